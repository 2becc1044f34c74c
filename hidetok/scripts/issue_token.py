from __future__ import annotations

import argparse

from hidetok.config import get_settings
from hidetok.services.auth import issue_token


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description='Print a caller token for the generation endpoints.')
    parser.add_argument('uid', help='caller user id')
    args = parser.parse_args(argv)

    settings = get_settings()
    if not settings.auth_token_secret.strip():
        raise SystemExit('AUTH_TOKEN_SECRET is not set.')
    print(issue_token(args.uid, settings.auth_token_secret.strip()))


if __name__ == '__main__':
    main()
