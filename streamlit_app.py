# streamlit_app.py
import streamlit as st
import requests

API_BASE = st.secrets.get("API_BASE", "http://localhost:3000")

st.set_page_config(page_title="Design Relay", page_icon="🎨", layout="wide")

st.title("🎨 Design Relay — Operator Console")

try:
    health = requests.get(f"{API_BASE}/", timeout=5)
    st.caption(health.text if health.ok else f"API responded with {health.status_code}")
except requests.RequestException as e:
    st.error(f"❌ API not reachable at {API_BASE}: {e}")

st.markdown("---")

with st.sidebar:
    st.header("📋 Instructions")
    st.markdown("""
    **Generate:** submits a website for redesign. The result is delivered
    to the configured webhook, not to this page.

    **Images:** lists (or downloads on the server) every `<img>` found on a page.
    """)

col1, col2 = st.columns([1, 1])

with col1:
    st.header("🚀 Generate Design")

    with st.form("generate"):
        website_url = st.text_input("Website URL", placeholder="https://example.com")
        submitted = st.form_submit_button("🎯 Start Generation", use_container_width=True)

        if submitted:
            if not website_url:
                st.error("❌ Please enter a website URL")
            else:
                try:
                    r = requests.post(f"{API_BASE}/generate", json={"websiteUrl": website_url}, timeout=10)
                    if r.status_code == 202:
                        st.success("✅ Job accepted")
                        st.info(f"**Job ID:** `{r.json()['jobId']}`")
                    else:
                        st.error(f"❌ Error: {r.text}")
                except requests.RequestException as e:
                    st.error(f"❌ Connection error: {e}")

with col2:
    st.header("🖼️ Page Images")

    with st.form("images"):
        image_url = st.text_input("Website URL", placeholder="https://example.com", key="image_url")
        download = st.checkbox("Download to server storage", value=False)
        scrape = st.form_submit_button("🔍 Scrape Images", use_container_width=True)

        if scrape and image_url:
            path = "/download-images" if download else "/extract-images"
            with st.spinner("Loading page..."):
                try:
                    r = requests.post(f"{API_BASE}{path}", json={"websiteUrl": image_url}, timeout=180)
                    data = r.json()
                    if r.ok:
                        st.success(f"✅ Found {data['imageCount']} images")
                        if download:
                            st.dataframe(data["images"], use_container_width=True)
                        else:
                            for src in data["images"]:
                                st.text(src)
                    else:
                        st.error(f"❌ {data.get('error', r.text)}")
                except requests.RequestException as e:
                    st.error(f"❌ Connection error: {e}")

st.markdown("---")
st.subheader("📊 Jobs In Flight")

if st.button("🔄 Refresh"):
    st.rerun()

try:
    jobs_r = requests.get(f"{API_BASE}/jobs", timeout=5)
    if jobs_r.ok:
        jobs = jobs_r.json()["jobs"]
        if jobs:
            st.dataframe(
                [{"Job ID": j["jobId"][:8] + "...", "Status": j["status"], "Website": j["sourceUrl"]} for j in jobs],
                use_container_width=True,
            )
        else:
            st.info("No jobs running")
    else:
        st.warning("Could not fetch job list")
except requests.RequestException as e:
    st.warning(f"Could not fetch jobs: {e}")
