"""
Job decomposition for production manifests.
"""

from .decomposer import build_image_prompt, decompose_jobs, image_model_for, music_mood_for, resolution_for

__all__ = [
    'build_image_prompt',
    'decompose_jobs',
    'image_model_for',
    'music_mood_for',
    'resolution_for',
]
