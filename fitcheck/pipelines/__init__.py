"""
fitcheck pipelines.

Business logic orchestration functions.
"""

from fitcheck.pipelines.member import *
from fitcheck.pipelines.checkin import *
from fitcheck.pipelines.community import *
from fitcheck.pipelines.coach import *
from fitcheck.pipelines.media import *
