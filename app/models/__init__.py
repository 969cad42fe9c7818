# Models module for Party Bookings API
from app.models.schedule import (
    Period, Weekday, DisplayTime, Slot, SlotDraft, SlotDraftCreate
)
from app.models.user import (
    Role, AdminUser, LoginRequest, LoginResponse,
    OtpRequest, OtpVerifyRequest, OtpResponse
)
from app.models.content import (
    EntityKind, COLLECTIONS, ContentSubmission, SaveResult, DeleteResult,
    SelectorOption, FormOptions
)
from app.models.event import TicketType, EventPublic
from app.models.venue import VenueDetails, Venue
from app.models.promo import PromoLinkType, EventLink, UrlLink, Promo
from app.models.catalog import (
    CategoryIcon, Category, Partner, GalleryItem, Story, Highlight, CatalogSnapshot
)
from app.models.order import (
    OrderLine, OrderSummary, TicketQuoteRequest, ContactDetails,
    CheckoutRequest, CheckoutResponse
)
from app.models.booking import BookingStatus, Booking, StreakResponse
from app.models.reservation import (
    ReservationStatus, ReservationQuoteRequest, ReservationQuote,
    OrganizerDetails, ReservationConfirmRequest, ReservationOutcome
)
from app.models.payment import PaymentOutcome, PaymentResultRequest, PaymentResultResponse
