STATUS_OK = 1
STATUS_PARSE_ERROR = -1
STATUS_INVALID_DIGEST = -2
STATUS_INVALID_MODULE = -2
STATUS_INVALID_TYPE_TAG = -2
STATUS_UNKNOWN_KIND = -3
STATUS_INVALID_FUNCTION = -3


class SuiPtbError(Exception):
    """Base error for the transaction builder"""

    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self):
        if self.code is None:
            return self.message
        return f"{self.message} (code {self.code})"


class ValidationError(SuiPtbError):
    """Malformed address or digest, empty argument array, bad move call argument"""


class StateError(SuiPtbError):
    """Builder or pipeline used in the wrong state"""


class EncodingError(SuiPtbError):
    """Encoding engine reported a non-success status"""


class SimulationError(SuiPtbError):
    """Dry run reported a failed execution"""


class SignatureError(SuiPtbError):
    """Serialized signature has a wrong length or an unknown scheme flag"""


class RPCError(SuiPtbError):
    """Error thrown when the node is unreachable or answers with an error"""

    def __init__(self, message, status_code=None, code=None):
        super().__init__(message, code)
        self.status_code = status_code
