"""Request body schemas and the validation gate in front of the write handlers."""

from typing import Any, Dict, List, Optional, Type

import pydantic
from boto3.dynamodb.types import TypeSerializer
from pydantic import BaseModel, ConfigDict, Field, StrictStr

from udagram.exceptions import FieldError, ValidationError


class GroupRequest(BaseModel):
    """Body of POST /groups"""

    model_config = ConfigDict(extra='allow')

    name: StrictStr = Field(..., min_length=1, description="Group name")
    description: Optional[StrictStr] = Field(None, description="Optional group description")


class ImageRequest(BaseModel):
    """Body of POST /groups/{groupId}/images"""

    model_config = ConfigDict(extra='allow')

    title: StrictStr = Field(..., min_length=1, description="Image title")


SCHEMAS: Dict[str, Type[BaseModel]] = {
    'create-group-request': GroupRequest,
    'create-image-request': ImageRequest,
}


def _field_name(location) -> str:
    return '.'.join(str(part) for part in location) or 'body'


class RequestValidator:
    """Validate request bodies against the named schemas"""

    def __init__(self, schemas: Optional[Dict[str, Type[BaseModel]]] = None):
        self.schemas = SCHEMAS if schemas is None else schemas
        self.serializer = TypeSerializer()

    def validate(self, schema_name: str, body: Any) -> Dict[str, Any]:
        """Return the validated attributes or raise ValidationError listing every violation.

        Attributes not declared by the schema are kept. Optional fields the
        caller left out are not added to the result.
        """
        model = self.schemas[schema_name]

        if not isinstance(body, dict):
            raise ValidationError([FieldError('body', 'must be a JSON object')])

        errors = self._unstorable(body)
        try:
            parsed = model.model_validate(body)
        except pydantic.ValidationError as e:
            errors = [
                FieldError(_field_name(error['loc']), error['msg'])
                for error in e.errors()
            ] + errors
        if errors:
            raise ValidationError(errors)

        return {
            name: value
            for name, value in parsed.model_dump().items()
            if name in body
        }

    def _unstorable(self, body: Dict[str, Any]) -> List[FieldError]:
        """Attributes DynamoDB would refuse, e.g. floats or numbers beyond 38 digits"""
        errors = []
        for name, value in body.items():
            try:
                self.serializer.serialize(value)
            except (TypeError, ValueError, ArithmeticError) as e:
                errors.append(FieldError(str(name), f'cannot be stored: {e}'))
        return errors
