"""Services of the quota pipeline."""
