from rest_framework.response import Response
from rest_framework.views import exception_handler


def error_response(code, detail, status, fields=None):
    return Response({"code": code, "detail": detail, "fields": fields or {}}, status=status)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        return response

    if isinstance(response.data, dict):
        detail = response.data.get("detail", "Request failed")
        fields = {k: v for k, v in response.data.items() if k != "detail"}
    else:
        detail = "Request failed"
        fields = {}

    response.data = {
        "code": getattr(exc, "default_code", "error"),
        "detail": detail,
        "fields": fields,
    }
    return response
