"""Shared utilities."""

from src.utils.magic_bytes import check_image_content, sniff_image_type


__all__ = ["check_image_content", "sniff_image_type"]
