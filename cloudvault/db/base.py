# Import all the models, so that Base has them before being
# imported by create_all
from cloudvault.db.base_class import Base  # noqa
from cloudvault.models.user import User  # noqa
from cloudvault.models.file import FileRecord, FileVersion  # noqa
from cloudvault.models.folder import Folder  # noqa
from cloudvault.models.share import Share  # noqa
