from .user import User
from .file import FileRecord, FileVersion, ROOT_FOLDER, VISIBILITY_PRIVATE, VISIBILITY_PUBLIC
from .folder import Folder
from .share import Share
