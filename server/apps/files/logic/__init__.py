"""Business logic layer for the file store.

Version numbering, access rules, listing queries and the
``FileService`` orchestrating them. Views and admin only call into
this package, never into the infrastructure directly.
"""
