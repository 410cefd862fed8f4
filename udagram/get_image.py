from udagram.common import ResponseFormatter, path_parameter
from udagram.services import ServiceFactory


def lambda_handler(event, context):
    """
    Get a single image record by its image id
    """
    try:
        image_id = path_parameter(event, 'imageId')

        service = ServiceFactory.create_image_service()
        item = service.get_image(image_id)

        return ResponseFormatter.success_response({'item': item})

    except Exception as e:
        return ResponseFormatter.from_error(e)
