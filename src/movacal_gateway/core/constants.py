"""
Constantes globales pour Movacal Gateway.
"""

# ============================================================================
# UPSTREAM MOVACAL
# ============================================================================
DEFAULT_BASE_URL = "https://link.movacal.net/service/api/v1"
CREDENTIAL_ENDPOINT = "credential.php"
CREDENTIAL_PARAM_KEY = "credential"  # Clé réservée, jamais surchargeable par l'appelant
CREDENTIAL_FETCH_TIMEOUT_S = 30.0
DEFAULT_CREDENTIAL_TTL_S = 900  # 15 minutes
CREDENTIAL_RANDOM_BYTES = 32

# ============================================================================
# GATEWAY
# ============================================================================
READ_ONLY_PREFIX = "get"
DEFAULT_CALL_TIMEOUT_S = 30
MIN_CALL_TIMEOUT_S = 1
MAX_CALL_TIMEOUT_S = 60
CONTEXTUAL_CLINIC_KEY = "clinic_info"

# Endpoints en lecture seule autorisés par défaut
DEFAULT_ALLOWED_ENDPOINTS = (
    "getPatientlist.php",
    "getPatient.php",
    "getPatient2.php",
    "getDiaglist.php",
    "getDiagdata.php",
    "getDiagAttachement.php",
    "getExamlist.php",
    "getExamdata.php",
    "getDocslist.php",
    "getDocsdata.php",
    "getDispdocs.php",
    "getDocsmap.php",
    "getSchedule.php",
    "getFacility.php",
    "getDisease.php",
    "getVisitNurse.php",
    "getUserData.php",
    "getActcode.php",
    "getReserve.php",
    "getSummaryItem.php",
    "getHospitalization.php",
    "getOuterChecked.php",
    "getVersion.php",
    "getNursePeriod.php",
    "getFilelist.php",
    "getFile.php",
    "getFileCategory.php",
    "getNrecorddata.php",
    "getNrecordAttachment.php",
    "getPatientHistory.php",
    "getBasicOrder.php",
)

# ============================================================================
# SERVEUR MCP
# ============================================================================
MCP_SERVER_NAME = "Movacal Server"
MCP_SERVER_VERSION = "0.1.0"
MCP_TOOL_NAME = "movacal_get"
SUPPORTED_PROTOCOL_VERSIONS = (
    "2025-06-18",
    "2025-03-26",
    "2024-11-05",
)

# ============================================================================
# JOURNALISATION JSON-RPC
# ============================================================================
LOG_RAW_PREVIEW_BYTES = 2000
LOG_SANITIZED_JSON_BYTES = 8000
LOG_SCALAR_MAX_BYTES = 256
TRUNCATION_MARKER = "...(truncated)"
