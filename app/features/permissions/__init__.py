"""
Permission feature module.

Role based permissions for the board portal, the builders that materialise
them per user, and the separate role system of the manage area.
"""
