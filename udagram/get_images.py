from udagram.common import ResponseFormatter, path_parameter
from udagram.services import ServiceFactory


def lambda_handler(event, context):
    """
    List the images of a group, oldest first
    """
    try:
        group_id = path_parameter(event, 'groupId')

        service = ServiceFactory.create_image_service()
        items = service.list_images(group_id)

        return ResponseFormatter.success_response({'items': items})

    except Exception as e:
        return ResponseFormatter.from_error(e)
