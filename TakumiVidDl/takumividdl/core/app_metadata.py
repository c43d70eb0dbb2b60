from __future__ import annotations

APP_NAME = "TakumiVidDl"
APP_VERSION = "0.3.0"
USER_AGENT = APP_NAME

YTDLP_RELEASE_API_URL = "https://api.github.com/repos/yt-dlp/yt-dlp-nightly-builds/releases/latest"
YTDLP_DOCS_URL = "https://github.com/yt-dlp/yt-dlp#usage-and-options"
