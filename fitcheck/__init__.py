"""
fitcheck - daily fitness check-ins, streaks and coach engagement.

Application package built on the generic common/ library.
"""
