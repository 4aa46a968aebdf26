import os

# Keep the app's own engine off disk; tests bind their own in-memory database.
os.environ.setdefault("DATABASE_URL", "sqlite://")
