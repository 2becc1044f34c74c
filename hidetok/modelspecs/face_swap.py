from __future__ import annotations

from hidetok.modelspecs.base import ModelSpec


FACE_SWAP = ModelSpec(
    key='face_swap',
    provider='replicate',
    model_id='cdingram/face-swap:d1d6ea8c8be89d664a07a457526f7128109dee7030fdac424788d762c71ed111',
    model_type='swap',
    display_name='Face Swap',
    poll_interval=2,
    max_poll_attempts=45,
    host_timeout_seconds=180,
    source_image_key='input_image',
    swap_image_key='swap_image',
)
