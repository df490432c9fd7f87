"""
Checklist picker - checklists grouped by owning company
"""
from typing import Dict, Iterable, List

from app.models import Checklist
from app.schemas.checklist import ChecklistResponse, CompanyChecklists, CompanyResponse
from app.services.gateway import ChecklistGateway


def group_checklists_by_company(checklists: Iterable[Checklist]) -> List[CompanyChecklists]:
    """Group checklist rows by company, companies in alphabetical order."""
    groups: Dict[int, CompanyChecklists] = {}
    for checklist in checklists:
        company = checklist.company
        group = groups.get(company.id)
        if group is None:
            group = CompanyChecklists(company=CompanyResponse.model_validate(company))
            groups[company.id] = group
        group.checklists.append(ChecklistResponse.model_validate(checklist))

    return sorted(groups.values(), key=lambda group: (group.company.name.lower(), group.company.name))


async def list_grouped_checklists(gateway: ChecklistGateway) -> List[CompanyChecklists]:
    return group_checklists_by_company(await gateway.list_checklists())
