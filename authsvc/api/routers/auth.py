from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException

from authsvc.api.deps import (
    get_current_user,
    get_get_profile_use_case,
    get_login_google_code_use_case,
    get_login_google_id_token_use_case,
    get_login_local_use_case,
    get_logout_all_sessions_use_case,
    get_logout_session_use_case,
    get_refresh_session_use_case,
    get_register_user_use_case,
    get_update_profile_use_case,
    get_update_user_details_use_case,
)
from authsvc.api.schemas.auth import (
    AuthData,
    AuthEnvelope,
    EnvelopeResponse,
    GoogleCallbackRequest,
    GoogleIdTokenRequest,
    LoginRequest,
    PreferencesResponse,
    RefreshTokenRequest,
    RegisterRequest,
    TokensData,
    TokensEnvelope,
    TokensResponse,
    UpdateProfileRequest,
    UpdateUserDetailsRequest,
    UserData,
    UserEnvelope,
    UserResponse,
)
from authsvc.application.dto.auth import (
    AuthTokensOutput,
    AuthUserOutput,
    LoginGoogleCodeInput,
    LoginGoogleIdTokenInput,
    LoginLocalInput,
    LogoutInput,
    RefreshSessionInput,
    RegisterUserInput,
    TokenPair,
    UpdateProfileInput,
    UpdateUserDetailsInput,
)
from authsvc.application.use_cases.get_profile import GetProfileUseCase
from authsvc.application.use_cases.login_google import (
    LoginGoogleCodeUseCase,
    LoginGoogleIdTokenUseCase,
)
from authsvc.application.use_cases.login_local import LoginLocalUseCase
from authsvc.application.use_cases.logout_all_sessions import LogoutAllSessionsUseCase
from authsvc.application.use_cases.logout_session import LogoutSessionUseCase
from authsvc.application.use_cases.refresh_session import RefreshSessionUseCase
from authsvc.application.use_cases.register_user import RegisterUserUseCase
from authsvc.application.use_cases.update_profile import UpdateProfileUseCase
from authsvc.application.use_cases.update_user_details import UpdateUserDetailsUseCase
from authsvc.domain.entities.user import User
from authsvc.domain.exceptions import (
    GoogleOAuthExchangeError,
    GoogleTokenValidationError,
    InvalidCredentialsError,
    TokenExpiredError,
    TokenInvalidError,
    UpstreamUnavailableError,
    UserAlreadyExistsError,
    UserNotFoundError,
    ValidationError,
)


router = APIRouter(prefix="/auth", tags=["auth"])


def _user_response(user: AuthUserOutput) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        phone=user.phone,
        name=user.name,
        first_name=user.first_name,
        last_name=user.last_name,
        age=user.age,
        picture=user.picture,
        verified_email=user.verified_email,
        verified_phone=user.verified_phone,
        last_login=user.last_login,
        login_count=user.login_count,
        preferences=PreferencesResponse(
            theme=user.preferences.theme,
            notifications=user.preferences.notifications,
        ),
    )


def _tokens_response(tokens: TokenPair) -> TokensResponse:
    return TokensResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.expires_in,
    )


def _auth_envelope(output: AuthTokensOutput, message: str) -> AuthEnvelope:
    return AuthEnvelope(
        message=message,
        data=AuthData(user=_user_response(output.user), tokens=_tokens_response(output.tokens)),
    )


def _refresh_token_error(exc: TokenInvalidError) -> HTTPException:
    if isinstance(exc, TokenExpiredError):
        return HTTPException(status_code=401, detail="Refresh token expired.")
    return HTTPException(status_code=401, detail="Invalid refresh token.")


def _require_refresh_token(req: RefreshTokenRequest) -> str:
    token = (req.refresh_token or "").strip()
    if not token:
        raise HTTPException(status_code=401, detail="Refresh token required.")
    return token


@router.post("/register", response_model=AuthEnvelope, status_code=201)
def register_user(
    req: RegisterRequest,
    user_agent: str | None = Header(default=None),
    use_case: RegisterUserUseCase = Depends(get_register_user_use_case),
):
    try:
        output = use_case.execute(
            RegisterUserInput(
                name=req.name,
                email=req.email,
                phone=req.phone,
                password=req.password,
                device_info=user_agent,
            )
        )
    except UserAlreadyExistsError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return _auth_envelope(output, "User registered successfully")


@router.post("/login", response_model=AuthEnvelope)
def login_local(
    req: LoginRequest,
    user_agent: str | None = Header(default=None),
    use_case: LoginLocalUseCase = Depends(get_login_local_use_case),
):
    try:
        output = use_case.execute(
            LoginLocalInput(
                identifier=req.identifier,
                password=req.password,
                device_info=user_agent,
            )
        )
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    return _auth_envelope(output, "Login successful")


@router.post("/google/callback", response_model=AuthEnvelope)
def login_google_code(
    req: GoogleCallbackRequest,
    user_agent: str | None = Header(default=None),
    use_case: LoginGoogleCodeUseCase = Depends(get_login_google_code_use_case),
):
    if not (req.code or "").strip():
        raise HTTPException(status_code=400, detail="Authorization code is required")

    try:
        output = use_case.execute(
            LoginGoogleCodeInput(code=req.code, state=req.state, device_info=user_agent)
        )
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except UserAlreadyExistsError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except UpstreamUnavailableError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except GoogleOAuthExchangeError as exc:
        raise HTTPException(
            status_code=400,
            detail={"message": str(exc), "error": exc.payload},
        ) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return _auth_envelope(output, "Authentication successful")


@router.post("/google/id-token", response_model=AuthEnvelope)
def login_google_id_token(
    req: GoogleIdTokenRequest,
    user_agent: str | None = Header(default=None),
    use_case: LoginGoogleIdTokenUseCase = Depends(get_login_google_id_token_use_case),
):
    try:
        output = use_case.execute(
            LoginGoogleIdTokenInput(id_token=req.id_token, device_info=user_agent)
        )
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except UserAlreadyExistsError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except UpstreamUnavailableError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except GoogleTokenValidationError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return _auth_envelope(output, "Authentication successful")


@router.post("/refresh", response_model=TokensEnvelope)
def refresh_session(
    req: RefreshTokenRequest,
    user_agent: str | None = Header(default=None),
    use_case: RefreshSessionUseCase = Depends(get_refresh_session_use_case),
):
    token = _require_refresh_token(req)
    try:
        output = use_case.execute(RefreshSessionInput(refresh_token=token, device_info=user_agent))
    except TokenInvalidError as exc:
        raise _refresh_token_error(exc) from exc

    return TokensEnvelope(
        message="Token refreshed successfully",
        data=TokensData(tokens=_tokens_response(output.tokens)),
    )


@router.post("/logout", response_model=EnvelopeResponse)
def logout_session(
    req: RefreshTokenRequest,
    use_case: LogoutSessionUseCase = Depends(get_logout_session_use_case),
):
    token = _require_refresh_token(req)
    try:
        use_case.execute(LogoutInput(refresh_token=token))
    except TokenInvalidError as exc:
        raise _refresh_token_error(exc) from exc

    return EnvelopeResponse(message="Logged out successfully")


@router.post("/logout-all", response_model=EnvelopeResponse)
def logout_all_sessions(
    req: RefreshTokenRequest,
    use_case: LogoutAllSessionsUseCase = Depends(get_logout_all_sessions_use_case),
):
    token = _require_refresh_token(req)
    try:
        use_case.execute(LogoutInput(refresh_token=token))
    except TokenInvalidError as exc:
        raise _refresh_token_error(exc) from exc

    return EnvelopeResponse(message="Logged out from all devices successfully")


@router.get("/profile", response_model=UserEnvelope)
def get_profile(
    current_user: User = Depends(get_current_user),
    use_case: GetProfileUseCase = Depends(get_get_profile_use_case),
):
    output = use_case.execute(user=current_user)
    return UserEnvelope(data=UserData(user=_user_response(output)))


@router.put("/profile", response_model=UserEnvelope)
def update_profile(
    req: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    use_case: UpdateProfileUseCase = Depends(get_update_profile_use_case),
):
    preferences = req.preferences
    try:
        output = use_case.execute(
            UpdateProfileInput(
                user_id=current_user.id,
                name=req.name,
                theme=preferences.theme if preferences else None,
                notifications=preferences.notifications if preferences else None,
            )
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except UserNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return UserEnvelope(
        message="Profile updated successfully",
        data=UserData(user=_user_response(output)),
    )


@router.put("/user-details", response_model=UserEnvelope)
def update_user_details(
    req: UpdateUserDetailsRequest,
    current_user: User = Depends(get_current_user),
    use_case: UpdateUserDetailsUseCase = Depends(get_update_user_details_use_case),
):
    try:
        output = use_case.execute(
            UpdateUserDetailsInput(
                user_id=current_user.id,
                first_name=req.first_name,
                last_name=req.last_name,
                age=req.age,
            )
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except UserNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return UserEnvelope(
        message="User details updated successfully",
        data=UserData(user=_user_response(output)),
    )


@router.get("/check", response_model=UserEnvelope)
def check_auth(
    current_user: User = Depends(get_current_user),
    use_case: GetProfileUseCase = Depends(get_get_profile_use_case),
):
    output = use_case.execute(user=current_user)
    return UserEnvelope(
        message="User is authenticated",
        data=UserData(user=_user_response(output)),
    )
