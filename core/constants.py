# core/constants.py
JOB_STATUS_CHOICES = (
    ('open', 'Open'),                # Posted and accepting bids
    ('assigned', 'Assigned'),        # A bid was accepted and a booking exists
    ('in_progress', 'In Progress'),  # Work has started
    ('completed', 'Completed'),      # Both parties confirmed completion
    ('cancelled', 'Cancelled'),      # Owner cancelled while still open
    ('disputed', 'Disputed'),        # Frozen pending external arbitration
)

BID_STATUS_CHOICES = (
    ('pending', 'Pending'),      # Worker bid, awaiting customer response
    ('accepted', 'Accepted'),    # Customer accepted this bid
    ('rejected', 'Rejected'),    # Customer rejected it, or another bid won
    ('withdrawn', 'Withdrawn'),  # Worker withdrew it while pending
)

BOOKING_STATUS_CHOICES = (
    ('confirmed', 'Confirmed'),
    ('in_progress', 'In Progress'),
    ('completed', 'Completed'),
)

DELIVERY_STATUS_CHOICES = (
    ('pending', 'Pending'),
    ('sent', 'Sent'),
    ('failed', 'Failed'),
)

# A booking exists for a job exactly while the job is in one of these states.
BOOKED_JOB_STATUSES = ('assigned', 'in_progress', 'completed', 'disputed')
