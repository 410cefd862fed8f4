from udagram.common import ResponseFormatter, parse_body, path_parameter
from udagram.services import ServiceFactory
from udagram.validation import RequestValidator


def lambda_handler(event, context):
    """
    Create an image record in a group and return a presigned upload URL.

    The client PUTs the image bytes to ``uploadUrl``; S3 then triggers the
    send_notifications function.
    """
    try:
        group_id = path_parameter(event, 'groupId')
        body = RequestValidator().validate('create-image-request', parse_body(event))

        service = ServiceFactory.create_image_service()
        created = service.create_image(group_id, body)

        return ResponseFormatter.success_response({
            'item': created['record'],
            'uploadUrl': created['uploadUrl']
        }, 201)

    except Exception as e:
        return ResponseFormatter.from_error(e)
