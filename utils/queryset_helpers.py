from django.db.models import Q


class FilterableQuerysetMixin:
    """
    Mixin to provide common filtering functionality for querysets.
    Reduces code duplication in ViewSets that need query parameter filtering.
    """

    def get_queryset(self):
        """
        Returns filtered queryset based on query parameters.
        Override filter_fields in subclasses to specify which fields to filter.
        """
        qs = super().get_queryset()

        for field in getattr(self, "filter_fields", []):
            value = self.request.query_params.get(field)
            if value:
                qs = qs.filter(**{f"{field}__iexact": value})

        return qs


class SellerQuerysetMixin:
    """
    Limits a booking queryset to the bookings sold by the requesting agent
    or consultant.
    """

    def get_queryset(self):
        qs = super().get_queryset()
        user = self.request.user
        return qs.filter(Q(agent=user) | Q(consultant=user))


class OrderedQuerysetMixin:
    """
    Mixin to provide default ordering for querysets.
    """

    def get_queryset(self):
        """
        Returns ordered queryset based on default_ordering.
        Override default_ordering in subclasses to specify ordering.
        """
        qs = super().get_queryset()
        ordering = getattr(self, "default_ordering", ["-created_at"])
        return qs.order_by(*ordering)


class SearchableQuerysetMixin:
    """
    Mixin to provide search functionality for querysets.
    """

    def get_queryset(self):
        """
        Returns queryset with search functionality.
        Override search_fields in subclasses to specify which fields to search.
        """
        qs = super().get_queryset()
        search_query = self.request.query_params.get("search")

        if search_query:
            search_fields = getattr(self, "search_fields", [])
            if search_fields:
                q_objects = Q()
                for field in search_fields:
                    q_objects |= Q(**{f"{field}__icontains": search_query})
                qs = qs.filter(q_objects)

        return qs
