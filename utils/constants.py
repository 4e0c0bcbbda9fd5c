# ---------- ROLE AND STATUS CHOICES ----------

class Choices:
    ROLE_CHOICES = [
        ("admin", "Admin"),
        ("agent", "Agent"),
        ("consultant", "Consultant"),
    ]

    APPROVAL_STATUS_CHOICES = [
        ("pending", "Pending"),
        ("approved", "Approved"),
        ("declined", "Declined"),
    ]

    SERVICE_TYPE_CHOICES = [
        ("standard", "Standard"),
        ("executive", "Executive"),
        ("sleeper", "Sleeper"),
    ]

    PAYMENT_STATUS_CHOICES = [
        ("pending", "Pending"),
        ("initiated", "Initiated"),
        ("paid", "Paid"),
        ("failed", "Failed"),
    ]

    BOOKING_STATUS_CHOICES = [
        ("confirmed", "Confirmed"),
        ("rescheduled", "Rescheduled"),
        ("cancelled", "Cancelled"),
    ]

    PASSENGER_TYPE_CHOICES = [
        ("adult", "Adult"),
        ("child", "Child"),
    ]

    GATEWAY_CHOICES = [
        ("stripe", "Stripe"),
        ("dpo", "DPO"),
    ]

    TRANSACTION_PURPOSE_CHOICES = [
        ("booking", "Booking"),
        ("addon", "Add-on"),
    ]

    TRANSACTION_STATUS_CHOICES = [
        ("initiated", "Initiated"),
        ("paid", "Paid"),
        ("failed", "Failed"),
    ]


class PaymentStatus:
    PENDING = "pending"
    INITIATED = "initiated"
    PAID = "paid"
    FAILED = "failed"


class BookingStatus:
    CONFIRMED = "confirmed"
    RESCHEDULED = "rescheduled"
    CANCELLED = "cancelled"


# ---------- USER MESSAGES ----------
class UserMessage:
    REGISTRATION_PENDING = "Registration received. Waiting for admin approval."
    INVALID_CREDENTIALS = "Invalid username or password."
    ACCOUNT_NOT_APPROVED = "Your account has not been approved yet."
    ACCOUNT_SUSPENDED = "Your account is suspended."
    USERNAME_TOO_SHORT = "Username must be at least 5 characters long."
    MOBILE_NUMBER_INVALID = "Mobile number must contain 7 to 15 digits."
    PASSWORD_NOT_MATCH = "Passwords do not match."
    AGENT_NOT_FOUND = "Agent not found."
    AGENT_ALREADY_PROCESSED = "Agent registration has already been processed."
    AGENT_ALREADY_SUSPENDED = "Agent is already suspended."
    AGENT_NOT_SUSPENDED = "Agent is not suspended."
    PASSWORD_CHANGED_SUCCESS = "Password changed successfully."
    CURRENT_PASSWORD_INCORRECT = "Current password is incorrect."
    SELLER_APPROVED = "Agent approved successfully."
    SELLER_DECLINED = "Agent declined."
    SELLER_SUSPENDED = "Agent suspended."
    SELLER_REINSTATED = "Agent reinstated."


# ---------- UNIQUE FIELD CONFLICTS ----------
class AlreadyExistsMessage:
    EMAIL_ALREADY_EXISTS = "Email already exists."
    USERNAME_ALREADY_EXISTS = "Username already exists."
    MOBILE_ALREADY_EXISTS = "Mobile number already exists."


class GeneralMessage:
    INVALID_INPUT = "Invalid input provided."
    SOMETHING_WENT_WRONG = "Something went wrong. Please try again later."


# ------------TRIP CONSTANTS-------------
class TripMessage:
    BUS_NOT_FOUND = "Bus not found."
    BUS_ALREADY_EXISTS = "Bus with this registration already exists."
    TRIP_NOT_FOUND = "Trip not found."
    INVALID_DATE = "Date must be in YYYY-MM-DD format."
    SEATS_EXCEED_CAPACITY = "Trip seats cannot exceed the bus capacity."
    SEATS_BELOW_SOLD = "Trip seats cannot be reduced below the seats already sold."
    SAME_ORIGIN_DESTINATION = "Origin and destination must be different."


# ----------- BOOKING CONSTANTS -------------
class BookingMessage:
    BOOKING_NOT_FOUND = "Booking not found."
    BOOKING_NOT_AUTHORIZED = "Booking not found or not authorized."
    SEATS_REQUIRED = "At least one seat must be selected."
    INVALID_SEAT_FORMAT = "Invalid seat format: {seats}"
    DUPLICATE_SEATS = "Seats must not be repeated."
    RETURN_TRIP_REQUIRED = "Return seats require a return trip."
    RETURN_SEATS_REQUIRED = "A return trip requires return seats."
    SAME_TRIP_FOR_RETURN = "Return trip must be different from the departure trip."
    INSUFFICIENT_SEATS = "Only {available} seats available, but {requested} requested."
    SEATS_UNAVAILABLE = "Seats already booked: {seats}"
    SEAT_OUT_OF_RANGE = "Seats do not exist on this bus: {seats}"
    PENDING_BOOKING_EXISTS = (
        "You already have a pending booking for this trip. "
        "Please complete or cancel it first."
    )
    ORDER_REF_CONFLICT = "Order reference is already used by a different booking."
    ORDER_REF_TOO_LONG = "Order reference must be at most {max_length} characters."
    TRANSIENT_FAILURE = "Booking could not be completed right now. Please try again."
    CHANGE_WINDOW_CLOSED = "Cannot edit/reschedule within {hours} hours of departure."
    BOOKING_CANCELLED = "Booking has been cancelled."
    ALREADY_CANCELLED = "Booking is already cancelled."
    RETURN_RESCHEDULE_WITHOUT_RETURN = "Booking has no return trip to reschedule."
    ADDON_PRICE_INVALID = "Add-on price must be greater than zero."


# ----------- PAYMENT CONSTANTS -------------
class PaymentMessage:
    GATEWAY_NOT_SUPPORTED = "Unsupported payment gateway: {gateway}"
    GATEWAY_UNAVAILABLE = "Payment gateway is unavailable. Your booking is saved as pending."
    GATEWAY_REJECTED = "Payment gateway rejected the request."
    INVALID_SIGNATURE = "Invalid signature"
    INVALID_PAYLOAD = "Invalid webhook payload"
    MISSING_PARAMETERS = "Missing parameters"
    TRANSACTION_NOT_FOUND = "No payment transaction matches this order"
    ORDER_MISMATCH = "Payment was made for a different order"
