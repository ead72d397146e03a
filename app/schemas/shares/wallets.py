from typing import Optional

from pydantic import BaseModel


class CoursePurchaseSchema(BaseModel):
    promo_code: Optional[str] = None
