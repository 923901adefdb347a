"""
Bookings domain - admission of new bookings and booking status changes.

Admission is the only writer of new booking rows and re-validates the
requested slot inside a serializable transaction under the slot lock.
"""
