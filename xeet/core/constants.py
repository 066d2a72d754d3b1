"""Fixed limits of the posting API."""

# Unicode scalar values per message
MAX_POST_LENGTH = 280

# One request slot every RATE_LIMIT_INTERVAL seconds, no bursting
RATE_LIMIT_INTERVAL = 15.0
RATE_LIMIT_BURST = 1

# Overall deadline for a single HTTP exchange, in seconds
REQUEST_TIMEOUT = 30.0

# Success codes
HTTP_OK = 200
HTTP_CREATED = 201

MEDIA_FORM_FIELD = "media"
MEDIA_FILENAME = "image.png"
