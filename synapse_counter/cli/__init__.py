"""Command-line driver: batch traversal, cancellation and the argparse entry point."""

from .worker import BatchItem, BatchWorker, collect_items, iter_images

__all__ = ["BatchItem", "BatchWorker", "collect_items", "iter_images"]
