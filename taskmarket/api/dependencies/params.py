from typing import Annotated

from fastapi import Path

from taskmarket.schemas.common import MAX_ROW_ID

RowId = Annotated[int, Path(gt=0, le=MAX_ROW_ID)]
