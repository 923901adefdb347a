"""
Scheduling domain - working hours, slot generation and the quick-slot scan.

The pure pieces (schedule, intervals, slot_generator, scanner) have no I/O;
repository/service/router wire them to storage and HTTP.
"""
