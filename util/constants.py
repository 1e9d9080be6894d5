class BackendURIs:
    RESUMES = "/resumes"
    UPLOAD = RESUMES + "/upload"
    TASK_STATUS = RESUMES + "/task/{task_id}/status"
    OPTIMIZE = RESUMES + "/optimize"
    OPTIMIZE_STREAM = OPTIMIZE + "/stream"
    EMBEDDING = RESUMES + "/{resume_id}/embedding"
    GENERATE_OPTIMIZED_FILE = RESUMES + "/generateOptimizedFile"
    LIST = RESUMES + "/list"

    AUTH = "/auth"
    LOGIN = AUTH + "/login"
    LOGOUT = AUTH + "/logout"
    ME = AUTH + "/me"
    REGISTER = AUTH + "/register"
    VALIDATE = AUTH + "/validate"
    FORGOT_PASSWORD = AUTH + "/forgot-password"
    RESET_PASSWORD = AUTH + "/reset-password"


# Candidate locations of the bearer token in login/register responses, in priority order.
TOKEN_FIELD_PATHS = (
    ("accessToken",),
    ("token",),
    ("data", "accessToken"),
    ("data", "token"),
)
