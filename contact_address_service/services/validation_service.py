"""Request validation shared by every service operation."""

import logging
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from contact_address_service.config.logging import LoggingService

logger = logging.getLogger(__name__)
logging_service = LoggingService(__name__)

M = TypeVar("M", bound=BaseModel)


class ValidationService:
    """Turns raw request data into a typed request model."""

    def validate(self, schema: Type[M], data: Any) -> M:
        """Validate ``data`` against ``schema``.

        Args:
            schema: Request model class to build
            data: Mapping or model carrying the raw request fields

        Returns:
            A fresh, normalized instance of ``schema``

        Raises:
            pydantic.ValidationError: With one entry per offending field
        """
        if isinstance(data, BaseModel):
            data = data.model_dump()

        try:
            return schema.model_validate(data)
        except ValidationError as e:
            logging_service.log_operation(
                "warning",
                f"Invalid {schema.__name__}",
                operation="validate",
                error_count=e.error_count(),
                fields=[".".join(str(part) for part in err["loc"]) for err in e.errors()]
            )
            raise
