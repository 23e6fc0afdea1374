from .user import User, PendingRegistration
from .profile import Profile, ProfileExperience
from .posting import Job, GuestSpot
from .application import JobApplication, GuestSpotApplication
from .chat import Conversation, ConversationMember, ChatMessage
from .saved import SavedJob, SavedProfile
