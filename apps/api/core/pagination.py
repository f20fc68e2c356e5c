# ===============================================================================
# API PAGINATION CLASSES 📄
# ===============================================================================

from rest_framework.pagination import PageNumberPagination

from apps.common.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


class StandardResultsSetPagination(PageNumberPagination):
    """
    Standard pagination for marketplace list endpoints.
    Consistent page sizes across all API responses.
    """

    page_size = DEFAULT_PAGE_SIZE
    page_size_query_param = "page_size"
    max_page_size = MAX_PAGE_SIZE
