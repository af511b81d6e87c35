"""Pointer and touch interaction for BannerCanvas."""
