"""
Core app - Shared abstractions used by the feature apps.

Provides the closed set of business-rule outcomes that services return
instead of raising, so API layers can branch on a value rather than on
message text.
"""
