"""Report manifest API schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReportExportModel(BaseModel):
  id: str
  run_id: str = Field(..., alias='runId')
  run_type: str = Field(..., alias='runType')
  file_name: str = Field(..., alias='fileName')
  file_type: str = Field(..., alias='fileType')
  size_bytes: int = Field(..., alias='sizeBytes')
  created_at: Optional[datetime] = Field(None, alias='createdAt')
  author: Optional[str] = None
  run_label: Optional[str] = Field(None, alias='runLabel')
  description: Optional[str] = None
  download_path: str = Field(..., alias='downloadPath')

  model_config = ConfigDict(populate_by_name=True)


class ReportRunModel(BaseModel):
  id: str
  run_type: str = Field(..., alias='runType')
  created_at: Optional[datetime] = Field(None, alias='createdAt')
  start_date: Optional[str] = Field(None, alias='startDate')
  end_date: Optional[str] = Field(None, alias='endDate')
  operator_id: Optional[str] = Field(None, alias='operatorId')
  author: Optional[str] = None
  run_label: Optional[str] = Field(None, alias='runLabel')
  notes: Optional[str] = None
  total_revenue: Optional[float] = Field(None, alias='totalRevenue')
  total_costs: Optional[float] = Field(None, alias='totalCosts')
  net_profit: Optional[float] = Field(None, alias='netProfit')
  visit_count: int = Field(0, alias='visitCount')
  status: str

  model_config = ConfigDict(populate_by_name=True)
