from ..models import CustomModel
from .service import LikeState


class LikeResponse(CustomModel):
    state: LikeState
