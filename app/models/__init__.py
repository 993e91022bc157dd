from .user import User
from .file import StoredFile
from .session import UserSession
from .verification_token import TokenPurpose, VerificationToken
