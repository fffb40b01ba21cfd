"""Department roster API."""
from flask import Blueprint
from flask_jwt_extended import jwt_required
from eduattend.services.report_service import RosterService
from eduattend.utils.decorators import current_profile, profile_required
from eduattend.utils.helpers import success_response

roster_bp = Blueprint('roster', __name__)

@roster_bp.route('/', methods=['GET'])
@jwt_required()
@profile_required
def department_roster():
    """Students registered in the caller's department."""
    profiles = RosterService.list_profiles(current_profile().department)

    return success_response(data={
        'department': current_profile().department,
        'students': [
            p.to_dict(exclude=['signature_ref', 'created_at', 'updated_at'])
            for p in profiles
        ],
        'total': len(profiles)
    })
