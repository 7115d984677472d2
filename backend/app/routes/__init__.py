"""
StayBook Backend — API Routes Package
=======================================

Route Inventory:
    - auth.py:      POST /register, POST /login, POST /logout, GET /profile
    - listings.py:  POST /places, PUT /places/{id}, GET /places,
                    GET /places/{id}, GET /user-places
    - bookings.py:  POST /bookings, GET /bookings, GET /bookings/{id}
    - uploads.py:   POST /upload-by-link, POST /upload, GET /uploads/{path}
    - health.py:    GET /health

Routes stay thin: read the request, resolve the identity through the
authorization gate, call one service, return its result.
"""
