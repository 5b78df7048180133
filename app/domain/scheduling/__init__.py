"""
Scheduling domain - trainer bookings and their recurring session calendars.

Pure engine pieces (date math, duration parsing, tier plans, generation,
status tracking, extension) have no database access. The synchronizer owns
persistence of the session list and its legacy copies; the service and
router expose the booking operations over HTTP.
"""
