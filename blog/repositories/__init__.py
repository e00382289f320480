# Repositories package.
#
# One module per entity, each a set of async functions wrapping the
# SQLAlchemy queries for that table:
#
#   user_repository    : users + role membership lookups
#   role_repository    : roles + holder counts
#   article_repository : articles, newest-first listings, tag filter
#   comment_repository : comments, per-article listings
#   tag_repository     : tags by id / exact name
#
# Repositories hold no business rules: absent rows come back as None and
# writes only flush.  Validation and error translation live in the
# services; the transaction boundary lives in ``get_db``.
