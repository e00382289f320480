# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# the business rules for a single domain aggregate:
#
#   user_service    : registration, credentials, profile edits, deletes
#   role_service    : role CRUD, standard-role rules, role membership
#   article_service : article CRUD, tag resolution, newest-first listings
#   comment_service : comment CRUD and per-article listings
#   tag_service     : tag CRUD and get-or-create resolution by name
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Failures are raised as ``blog.exceptions``
# errors, never returned as None.
