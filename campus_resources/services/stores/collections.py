RESOURCES_COLLECTION = "resources"
USERS_COLLECTION = "users"


def downloads_collection(uid: str) -> str:
    return f"{USERS_COLLECTION}/{uid}/downloads"
