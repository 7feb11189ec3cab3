from pydantic import BaseModel, ConfigDict

# Integer primary keys are int4 on Postgres.
MAX_ROW_ID = 2_147_483_647


class StrictBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class MessageResponse(BaseModel):
    message: str
