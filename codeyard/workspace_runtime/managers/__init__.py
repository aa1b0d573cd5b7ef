"""Domain managers for the workspace runtime.

Managers expose async methods that encapsulate tree, branch and history
operations.  They raise domain exceptions (``LookupError``, ``ValueError``
and the subclasses in ``errors``), never HTTP exceptions -- that translation
is the router's responsibility.
"""
