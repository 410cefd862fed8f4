from udagram.common import ResponseFormatter
from udagram.services import ServiceFactory


def lambda_handler(event, context):
    """
    List all groups
    """
    try:
        service = ServiceFactory.create_group_service()
        items = service.list_groups()

        return ResponseFormatter.success_response({'items': items})

    except Exception as e:
        return ResponseFormatter.from_error(e)
