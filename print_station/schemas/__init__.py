from print_station.schemas.common import CamelModel, ok
from print_station.schemas.auth import AdminRegister, LoginRequest, ChangePasswordRequest, StaffProfileUpdate, StaffResponse
from print_station.schemas.users import ClerkCreate, ClerkUpdate, ResetPasswordRequest
from print_station.schemas.client import ClientRegister, ClientProfileUpdate, ClientAdminUpdate, ClientResponse
from print_station.schemas.otp import OtpRequest, OtpVerifyRequest
from print_station.schemas.print_job import StatusUpdate, PrintJobResponse
from print_station.schemas.dashboard import DashboardStats, DayCount
