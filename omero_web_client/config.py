"""Configuration constants for the OMERO web client."""

import os
from pathlib import Path

# Credentials can also be supplied via OMERO_USER / OMERO_PASSWORD env vars
DEFAULT_USER = os.environ.get("OMERO_USER", "")
DEFAULT_PASSWORD = os.environ.get("OMERO_PASSWORD", "")

# Holds servers.json (recently used servers); never credentials
CLIENT_HOME = Path(
    os.environ.get("OMERO_WEB_CLIENT_HOME", Path.home() / ".omero_web_client")
)
SERVER_HISTORY_FILE = "servers.json"

API_ROOT        = "/api/"
LOGOUT_URL      = "/webclient/logout/"
KEEPALIVE_URL   = "/webclient/keepalive_ping/"
LOGIN_CHECK_URL = "/webclient/?experimenter=-1"
LOGIN_PAGE_PATH = "/webclient/login/"
TILE_URL        = "/tile/"
OBJECT_API_URL  = "/api/v0/m/{kind}/{id}"

# Endpoint-map keys reported by the API version document
URL_LOGIN   = "url:login"
URL_TOKEN   = "url:token"
URL_SERVERS = "url:servers"
URL_BASE    = "url:base"

SESSION_COOKIE = "sessionid"
# 'provider' value returned by OPTIONS /tile/ when omero-ms-image-region is deployed
MICROSERVICE_PROVIDER = "PixelBufferMicroservice"

REQUEST_TIMEOUT    = float(os.environ.get("OMERO_REQUEST_TIMEOUT", "15"))
KEEPALIVE_INTERVAL = 60.0   # seconds; also the delay before the first ping
