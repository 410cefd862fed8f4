
from udagram.common import ResponseFormatter, parse_body
from udagram.services import ServiceFactory
from udagram.validation import RequestValidator


def lambda_handler(event, context):
    """
    Create a group from a body matching the create-group-request schema
    """
    try:
        body = RequestValidator().validate('create-group-request', parse_body(event))

        service = ServiceFactory.create_group_service()
        item = service.create_group(body)

        return ResponseFormatter.success_response({'item': item}, 201)

    except Exception as e:
        return ResponseFormatter.from_error(e)
