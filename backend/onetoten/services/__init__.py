"""Game domain services.

Room protocol and history persistence live here, imported by the HTTP
routes and socket handlers so transport concerns stay out of the game rules.
"""
