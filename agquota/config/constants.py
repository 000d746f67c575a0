"""Wire-level constants for the language server, Cloud Code and Google OAuth."""

# Language server RPC
LANGUAGE_SERVER_HOST = "127.0.0.1"
LANGUAGE_SERVER_PROCESS_NAME = "language_server_macos"
GET_USER_STATUS_PATH = (
    "/exa.language_server_pb.LanguageServerService/GetUserStatus"
)
CSRF_TOKEN_FLAG = "--csrf_token"
CSRF_TOKEN_HEADER = "X-Codeium-Csrf-Token"
CONNECT_PROTOCOL_VERSION = "1"
PROCESS_MARKERS = ("--app_data_dir", "antigravity")

# Cloud Code
CLOUD_CODE_BASE_URL = "https://cloudcode-pa.googleapis.com"
CLOUD_CODE_SANDBOX_BASE_URL = "https://daily-cloudcode-pa.sandbox.googleapis.com"
LOAD_CODE_ASSIST_PATH = "/v1internal:loadCodeAssist"
FETCH_AVAILABLE_MODELS_PATH = "/v1internal:fetchAvailableModels"
CLOUD_CODE_USER_AGENT = "antigravity"
CLIENT_METADATA = {
    "ideType": "ANTIGRAVITY",
    "platform": "PLATFORM_UNSPECIFIED",
    "pluginType": "GEMINI",
}
PROJECT_ID_FIELDS = ("name", "project", "projectId")

# Google OAuth (public client id of the installed application)
OAUTH_TOKEN_URL = "https://oauth2.googleapis.com/token"
OAUTH_CLIENT_ID = "77185425430.apps.googleusercontent.com"
UNKNOWN_EMAIL = "unknown@google.com"

# Credential store
AUTH_STATUS_KEY = "antigravityAuthStatus"
EXTENSION_KEY_PREFIX = "google.geminicodeassist."
DATABASE_CANDIDATES = (
    "Antigravity/User/globalStorage/state.vscdb",
    "Cursor/User/globalStorage/google.geminicodeassist/state.vscdb",
    "com.cursor.Cursor/User/globalStorage/google.geminicodeassist/state.vscdb",
    "Code/User/globalStorage/google.geminicodeassist/state.vscdb",
    "com.microsoft.VSCode/User/globalStorage/google.geminicodeassist/state.vscdb",
)
