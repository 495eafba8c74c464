from .user import User, UserCreate, UserUpdate, UserStorage
from .file import (
    FileRecord, FileRecordCreate, FileRecordUpdate, FileVersion, FileUploadResult, VersionInfo, VersionList,
    DownloadInfo, FileDeleteResult, VisibilityUpdate, FileMove,
)
from .folder import Folder, FolderCreate, FolderUpdate, FolderMove, FolderContent, FolderDeleteResult
from .share import ShareCreate, ShareLink
from .search import KeywordSearchResult, TypeSearchResult, RecentFiles, FileStats, SortedFileList, SortOptions
