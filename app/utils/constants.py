AVATAR_MAX_BYTES = 1024 * 1024
AVATAR_MIME_TYPES = {"image/jpeg", "image/png"}

USERNAME_PATTERN = r"^[a-z0-9_-]+$"
SETUP_USERNAME_PATTERN = r"^[a-zA-Z0-9_-]+$"
