from __future__ import annotations

from hidetok.modelspecs.base import ModelSpec


# Cold starts on this model run for minutes, hence the long budget.
HEAD_SWAP = ModelSpec(
    key='head_swap',
    provider='wavespeed',
    model_id='wavespeed-ai/image-head-swap',
    model_type='swap',
    display_name='Head Swap',
    poll_interval=3,
    max_poll_attempts=160,
    host_timeout_seconds=540,
    source_image_key='image',
    swap_image_key='face_image',
    extra_input={'output_format': 'jpeg', 'enable_base64_output': False},
)
