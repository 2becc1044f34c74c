from __future__ import annotations

from hidetok.modelspecs.base import ModelSpec, OptionSpec, OptionValue


AVATAR_PORTRAIT = ModelSpec(
    key='avatar_portrait',
    provider='replicate',
    model_id='black-forest-labs/flux-1.1-pro',
    model_type='text_to_image',
    display_name='AI Avatar Portrait',
    poll_interval=2,
    max_poll_attempts=30,
    host_timeout_seconds=120,
    options=[
        OptionSpec(
            key='aspect_ratio',
            label='Aspect ratio',
            default='1:1',
            values=[
                OptionValue('1:1', '1:1 (square)'),
                OptionValue('3:4', '3:4 (portrait)'),
            ],
        ),
        OptionSpec(
            key='output_format',
            label='Format',
            default='webp',
            values=[
                OptionValue('webp', 'WEBP'),
                OptionValue('png', 'PNG'),
                OptionValue('jpg', 'JPG'),
            ],
        ),
    ],
    extra_input={'safety_tolerance': 2, 'prompt_upsampling': False},
)
