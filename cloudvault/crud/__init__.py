from .crud_file import file
from .crud_folder import folder
from .crud_share import share
from .crud_user import user
