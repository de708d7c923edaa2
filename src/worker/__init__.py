"""Video intake worker process."""
