"""Blog backend: accounts, cookie sessions and posts with WebP covers."""
