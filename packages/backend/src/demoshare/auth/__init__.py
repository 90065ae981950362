"""Authentication and authorization.

Three layers, used by every resource route:
1. Identity — bearer token from the identity provider → internal User
   (created on first sight)
2. Ownership — resource target → effective owner + visibility
3. Permissions — caller + author + owner → can_view / can_edit / can_delete
"""
