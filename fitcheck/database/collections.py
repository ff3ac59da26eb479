"""
fitcheck collection names.

All collections live in the main database handed to MongoStore.
"""

MEMBERS = "members"
CHECKINS = "checkins"
PHOTOS = "photos"
PHOTO_BLOBS = "photoBlobs"
DAILY_AGGREGATES = "dailyAggregates"
