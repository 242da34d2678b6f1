from enum import Enum


class Channel(str, Enum):
    POPUP_SUCCESS = "popup_success"
    POPUP_ERROR = "popup_error"
    LOG = "log"
