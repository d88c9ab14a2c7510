"""Fixed error messages produced locally by the client."""

EXPIRED_TOKEN_MESSAGE = "The access token expired"

REQUEST_METHOD_UNSUPPORTED = "API request method {method} is not supported."
RATE_LIMIT_EXCEEDED = "ConvertKit API Error: Rate limit hit."
RESPONSE_TYPE_UNEXPECTED = (
    "ConvertKit API Error: The response is not of the expected type."
)

INTERNAL_SERVER_ERROR = "ConvertKit API Error: Internal server error."

# 5xx responses carry no usable detail, so the message comes from here.
SERVER_ERROR_MESSAGES = {
    500: INTERNAL_SERVER_ERROR,
    501: "ConvertKit API Error: Request method not supported by the server.",
    502: "ConvertKit API Error: Bad gateway.",
    503: "ConvertKit API Error: Service unavailable.",
    504: "ConvertKit API Error: Gateway timeout.",
    505: "ConvertKit API Error: HTTP version not supported.",
}


def server_error_message(status_code: int) -> str:
    return SERVER_ERROR_MESSAGES.get(status_code, INTERNAL_SERVER_ERROR)
