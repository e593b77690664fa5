"""Constants used throughout the application."""

from pathlib import Path

# Package resources
PACKAGE_DIR = Path(__file__).resolve().parent.parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"
STATIC_DIR = PACKAGE_DIR / "static"

# Storage layout
UPLOAD_DIRECTORY_NAME = "UploadFiles"
THUMBNAIL_DIRECTORY_NAME = "ThumbnailFiles"
THUMBNAIL_SUFFIX = ".jpg"
COPY_CHUNK_SIZE = 1024 * 1024  # 1MB

# Image processing
RGB_MODE = "RGB"
JPEG_FORMAT = "JPEG"
DEFAULT_JPEG_QUALITY = 85
DEFAULT_THUMBNAIL_MAX_SIZE = 200

# Request limits
DEFAULT_MAX_REQUEST_BODY_SIZE = 2 * 1024 * 1024 * 1024  # 2GB
DEFAULT_MAX_UPLOAD_FILES = 1000

# Rate limiting constants
UPLOAD_RATE_LIMIT = "120/minute"
SERVE_RATE_LIMIT = "600/minute"

# Content types
OCTET_STREAM = "application/octet-stream"
JPEG_MEDIA_TYPE = "image/jpeg"
PLACEHOLDER_IMAGE = "images/placeholder.svg"

# HTTP status codes
HTTP_400_BAD_REQUEST = 400
HTTP_413_REQUEST_ENTITY_TOO_LARGE = 413
HTTP_500_INTERNAL_SERVER_ERROR = 500

# Error messages
ERROR_FILE_NAME_REQUIRED = "File name is required"
ERROR_INVALID_FILE_NAME = "Invalid file name"
ERROR_REQUEST_TOO_LARGE = "Request body too large. Maximum allowed size is {limit} bytes."

# Application settings
APP_TITLE = "filedepot - File Upload and Download"
APP_DESCRIPTION = "Upload, list, download and delete files with image thumbnails"
APP_VERSION = "1.0.0"
