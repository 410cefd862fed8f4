from udagram.common import ResponseFormatter, path_parameter
from udagram.services import ServiceFactory


def lambda_handler(event, context):
    """
    Issue a new upload URL for an existing image, e.g. after the first expired
    """
    try:
        image_id = path_parameter(event, 'imageId')

        service = ServiceFactory.create_image_service()
        upload_url = service.refresh_upload_url(image_id)

        return ResponseFormatter.success_response({'uploadUrl': upload_url})

    except Exception as e:
        return ResponseFormatter.from_error(e)
