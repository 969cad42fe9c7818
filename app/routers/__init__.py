# Routers module for Party Bookings API
from app.routers import auth
from app.routers import public
from app.routers import admin
from app.routers import bookings
from app.routers import reservations
from app.routers import payments
from app.routers import uploads
