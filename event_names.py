# client -> server
JOIN = "join"
LEAVE_ROOM = "leaveRoom"
CODE_CHANGE = "codeChange"
TYPING = "typing"
LANGUAGE_CHANGE = "languageChange"

# server -> client
USER_JOINED = "userJoined"  # full roster snapshot, on every join/leave
CODE_UPDATE = "codeUpdate"  # coalesced buffer, everyone but the author
USER_TYPING = "userTyping"  # everyone but the typist
LANGUAGE_UPDATE = "languageUpdate"  # whole room, sender included
ERROR = "error"  # sender only

