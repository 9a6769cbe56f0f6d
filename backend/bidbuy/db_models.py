# Import all models once to ensure SQLAlchemy mapper registry is fully populated
# (Base.metadata.create_all / Alembic autogenerate).

from .users.models import User  # noqa: F401
from .auth.models import RefreshToken  # noqa: F401
from .articles.models import Article, ProductImage  # noqa: F401
from .likes.models import LikeArticle  # noqa: F401
from .offers.models import Offer  # noqa: F401
from .reviews.models import Review  # noqa: F401
