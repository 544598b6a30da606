"""
Image Job Parameters

Typed form of the serialized `parameters` string carried by RunJob.
"""

import json
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..errors import MessageDecodeError

Number = Union[int, float]


class CfgScale(BaseModel):
    """Classifier-free guidance range"""
    min: Number
    max: Number

    @model_validator(mode="after")
    def _ordered(self) -> "CfgScale":
        if self.min > self.max:
            raise ValueError(f"cfg_scale min {self.min} is greater than max {self.max}")
        return self


class NamedRef(BaseModel):
    """Reference to a character or styler preset"""
    model_config = ConfigDict(extra="allow")

    id: str


class ImageJobParameters(BaseModel):
    """
    Parameters for an image-generation workflow

    Unknown keys are kept so that providers can accept new options without a
    client release.
    """
    model_config = ConfigDict(extra="allow")

    workflow: str = Field(..., description="Workflow template name")
    positive_prompt: str
    negative_prompt: str = ""
    quality: str = "fast"
    aspect_ratio: str = "square"
    user_id: str = "0"
    cfg_scale: Optional[CfgScale] = None
    character: Optional[NamedRef] = None
    styler: Optional[NamedRef] = None

    def to_parameters_string(self) -> str:
        return json.dumps(self.model_dump(exclude_none=True))

    @classmethod
    def from_parameters_string(cls, text: str) -> "ImageJobParameters":
        """
        Parse a serialized parameters string

        Raises:
            MessageDecodeError: If the text is not JSON or misses required keys
        """
        try:
            data: Any = json.loads(text)
        except json.JSONDecodeError as e:
            raise MessageDecodeError(f"parameters are not valid JSON: {e}") from e
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MessageDecodeError(f"invalid image job parameters: {e}") from e
