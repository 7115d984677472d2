"""
StayBook Backend — ORM Models
===============================

    - user.py:     User     (registered identity, hashed password)
    - listing.py:  Listing  (bookable place, owned by a user)
    - booking.py:  Booking  (reservation of a listing by a user)
"""
