from .news import Article, ArticleDto, ArticlesResponse, SourceDto  # noqa: F401
from .result import Failure, FailureKind, Result  # noqa: F401
