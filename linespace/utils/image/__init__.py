from .io import flatten_to_rgb, load_image, save_jpeg
from .transform import fit_size, resize_image_to_fit, rotate_image


__all__ = [
    "fit_size",
    "flatten_to_rgb",
    "load_image",
    "resize_image_to_fit",
    "rotate_image",
    "save_jpeg",
]
