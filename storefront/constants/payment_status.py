from enum import Enum


class SessionStatus(str, Enum):
    idle = "idle"
    waiting = "waiting"
    expired = "expired"
    confirmed = "confirmed"


ALLOWED_TRANSITIONS = {
    SessionStatus.idle: [SessionStatus.waiting, SessionStatus.confirmed],
    SessionStatus.waiting: [SessionStatus.expired, SessionStatus.confirmed],
    SessionStatus.expired: [SessionStatus.confirmed],
    SessionStatus.confirmed: [],
}
