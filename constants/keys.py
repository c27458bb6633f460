class UIKeys:
    """Keys for UI widgets in ``st.session_state``."""

    LANG_SELECT = "lang"
    IMAGE_UPLOADER = "ui.images.uploader"
    NAV_PREVIOUS = "ui.nav.previous"
    NAV_NEXT = "ui.nav.next"
    NAV_SUBMIT = "ui.nav.submit"


class StateKeys:
    """Keys for data stored in ``st.session_state``."""

    SNAPSHOT = "wizard_snapshot"
    SESSION_ID = "session_id"
    SCROLL_TO_TOP = "_wizard_scroll_to_top"


class ProfileFields:
    """Canonical record field names shared across steps and payload mapping."""

    NAME = "name"
    LAST_NAME = "lastName"
    DOCUMENT = "document"
    PHONE = "phone"
    PHONE_CODE = "phoneCode"
    BIRTH_DATE = "birthDate"
    COUNTRY = "country"
    CITY = "city"
    DEPARTMENT = "department"
    LOCALITY = "locality"
    IMAGES = "images"

    DESCRIPTION = "description"
    GENDER_ID = "genderId"
    HEIGHT = "height"
    TAGS = "tags"
    BODY_TYPE_ID = "bodyTypeId"
    EYE_COLOR_ID = "eyeColorId"
    HAIR_COLOR_ID = "hairColorId"
    MARITAL_STATUS_ID = "maritalStatusId"
    EDUCATION_LEVEL_ID = "educationLevelId"
    PROFESSION = "profession"

    CATEGORY_INTEREST = "categoryInterest"
    AGE_PREFERENCE_MIN = "agePreferenceMin"
    AGE_PREFERENCE_MAX = "agePreferenceMax"
    LOCATION_PREFERENCE_RADIUS = "locationPreferenceRadius"
    RELIGION_ID = "religionId"
    CHURCH = "church"
    SPIRITUAL_MOMENTS = "spiritualMoments"
    SPIRITUAL_PRACTICES = "spiritualPractices"
    SEXUAL_ROLE_ID = "sexualRoleId"
    RELATIONSHIP_TYPE_ID = "relationshipTypeId"

    SHOW_AGE = "showAge"
    SHOW_LOCATION = "showLocation"
    ALLOW_NOTIFICATIONS = "allowNotifications"
    SHOW_ME_IN_SEARCH = "showMeInSearch"
