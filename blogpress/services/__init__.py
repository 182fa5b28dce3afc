# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single aggregate:
#
#   post_service     : list/search/pagination + CRUD for Post
#   comment_service  : append-only comment creation for Post
#   category_service : CRUD for Category
#   user_service     : read-only profiles for User
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Failures are raised as ``blogpress.exceptions``
# types; services never build HTTP responses.
